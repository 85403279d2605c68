from .returns import ReturnRequestRecord, ReturnItemRecord
from .repairs import RepairRecord
from .tickets import SupportTicketRecord, TicketMessageRecord
from .chat import ChatSessionRecord, ChatMessageRecord
from .appointments import AppointmentRecord, BookingSubject
from .feedback import FeedbackRecord, GoodwillEntry

__all__ = [
    'ReturnRequestRecord', 'ReturnItemRecord',
    'RepairRecord',
    'SupportTicketRecord', 'TicketMessageRecord',
    'ChatSessionRecord', 'ChatMessageRecord',
    'AppointmentRecord', 'BookingSubject',
    'FeedbackRecord', 'GoodwillEntry',
]
