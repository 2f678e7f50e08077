import dspy


class ContextSelector(dspy.Signature):
    """
    You are a software engineer analyzing code to determine the most relevant context
    for a TODO comment.

    Select the most relevant code context around the TODO comment from the numbered
    file content.

    ## Guidelines
    1. Include the TODO line itself
    2. Include relevant code above and below that helps understand what needs to be done
    3. Focus on:
       - The function/class/method containing the TODO
       - Related variable declarations and imports
       - Related function calls or logic flow
       - Type definitions or interfaces if relevant
    4. Keep it concise - aim for 10-30 lines total, but prioritize relevance over strict limits
    5. Do NOT include unrelated code from other functions/classes unless directly relevant
    6. Keep the exact format with line numbers: "   X | code line"

    Return ONLY the selected context lines in that format, nothing else.
    No markdown code blocks or other text.
    """

    todo_description: str = dspy.InputField(desc="Text of the TODO comment")
    file_path: str = dspy.InputField(desc="Path of the file containing the TODO")
    line_number: int = dspy.InputField(desc="1-based line number of the TODO")
    todo_line: str = dspy.InputField(desc="Raw source line holding the TODO")
    numbered_file_content: str = dspy.InputField(
        desc="Full file content, each line rendered as '   X | code'"
    )
    selected_context: str = dspy.OutputField(
        desc="Selected lines in the exact '   X | code' format, one per line"
    )
