from .db import transactional
from .money import format_money, format_timestamp
from .phone import whatsapp_digits
from .storage import MemoryStorage, SqlStorage, open_storage

__all__ = [
    'transactional',
    'format_money',
    'format_timestamp',
    'whatsapp_digits',
    'MemoryStorage',
    'SqlStorage',
    'open_storage',
]
