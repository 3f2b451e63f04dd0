"""
Number formatting for schedule reports.
"""


def format_number(num: float, decimals: int = 2) -> str:
    """Format a number to ``decimals`` places without trailing zeros.

    Examples:
        format_number(6.00) -> '6'
        format_number(6.50) -> '6.5'
        format_number(6.567) -> '6.57'
    """
    text = f"{num:.{decimals}f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    if text == '-0':
        text = '0'
    return text


def format_dose(amount: float, medication_name: str, decimals: int = 2) -> str:
    return f"{format_number(amount, decimals)} mg {medication_name}"
