import re


def whatsapp_digits(phone: str) -> str:
    """Strip everything but digits from a phone number.

    wa.me links take the bare number, so ``"+91 99839-44688"`` becomes
    ``"919983944688"``.
    """
    return re.sub(r"\D", "", phone or "")


__all__ = ["whatsapp_digits"]
