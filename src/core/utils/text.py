def truncate_text(text: str, max_length: int = 100) -> str:
    """Shorten ``text`` to ``max_length`` characters, ending with an ellipsis"""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def trim_address(address: str) -> str:
    """0x1234567...abcde style display form"""
    if len(address) > 12:
        return f"{address[:7]}...{address[-5:]}"
    return address
