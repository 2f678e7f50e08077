from .context_selector import ContextSelector
from .ticket_describer import TicketDescriber

__all__ = [
    "ContextSelector",
    "TicketDescriber",
]
