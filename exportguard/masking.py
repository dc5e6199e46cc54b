"""Email address handling for alert delivery and log output"""
import re
from typing import List, Tuple

from email_validator import EmailNotValidError, validate_email


def mask_value(value: str, mask_char: str = '*') -> str:
    """Keep first and last two characters visible"""
    if len(value) > 4:
        return value[:2] + mask_char * (len(value) - 4) + value[-2:]
    return mask_char * len(value)


class EmailValidator:
    """Validates alert recipients and masks email addresses in text"""

    # Basic email regex to find potential emails
    EMAIL_REGEX = re.compile(
        r'\b[A-Za-z0-9][A-Za-z0-9._%+-]*@[A-Za-z0-9][A-Za-z0-9.-]*\.[A-Z|a-z]{2,}\b',
        re.IGNORECASE
    )

    def __init__(self, check_deliverability: bool = False):
        """
        Initialize email validator.

        Args:
            check_deliverability: Whether to check if the domain has MX records
        """
        self.check_deliverability = check_deliverability

    def is_valid_address(self, address: str) -> bool:
        """Check that a recipient address can receive alerts"""
        if not address:
            return False
        try:
            validate_email(address, check_deliverability=self.check_deliverability)
        except EmailNotValidError:
            return False
        return True

    def find_matches(self, text: str) -> List[Tuple[str, int, int]]:
        """Find all valid email addresses in the text"""
        return [
            (match.group(0), match.start(), match.end())
            for match in self.EMAIL_REGEX.finditer(text)
            if self.is_valid_address(match.group(0))
        ]

    def mask_sensitive_data(self, text: str, mask_char: str = '*') -> str:
        """
        Mask email addresses in the text, keeping the domain readable.

        Args:
            text: The text containing email addresses
            mask_char: Character to use for masking

        Returns:
            Text with the local part of each address masked
        """
        matches = self.find_matches(text)
        if not matches:
            return text

        # Replace from the end to avoid position shifts
        result = text
        for matched_text, start, end in sorted(matches, key=lambda m: m[1], reverse=True):
            local, _, domain = matched_text.partition('@')
            result = result[:start] + mask_value(local, mask_char) + '@' + domain + result[end:]

        return result


_default_validator = EmailValidator()


def mask_email(address: str) -> str:
    """Mask an address for log output; unparseable input is masked whole"""
    if not address:
        return "<no address>"
    masked = _default_validator.mask_sensitive_data(address)
    return masked if masked != address else mask_value(address)
