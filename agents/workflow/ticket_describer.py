import dspy


class TicketDescriber(dspy.Signature):
    """
    You are a software engineer writing a ticket description for a TODO comment found in code.

    Generate a clear, concise, and professional description for this TODO ticket that:
    1. Explains what needs to be done based on the TODO comment
    2. Gives context about why this might be needed based on the full file content
    3. Is written in a professional tone suitable for a project management ticket
    4. Is 2-4 sentences long

    Use the full file content (imports, class/function definitions, overall structure)
    to understand the broader context.

    Return only the description text, without markdown formatting or commentary.
    """

    todo_description: str = dspy.InputField(desc="Text of the TODO comment")
    file_path: str = dspy.InputField(desc="Path of the file containing the TODO")
    line_number: int = dspy.InputField(desc="1-based line number of the TODO")
    code_context: str = dspy.InputField(
        desc="Code excerpt that will be included in the ticket, for reference"
    )
    file_content: str = dspy.InputField(desc="Full content of the file")
    ticket_description: str = dspy.OutputField(desc="Plain-text ticket description, 2-4 sentences")
