import re


class SecretScrubber:
    """Masks API keys before they reach the console or the log file."""

    PATTERNS = [
        re.compile(r"lin_api_[A-Za-z0-9]{8,}"),
        re.compile(r"sk-[A-Za-z0-9_\-]{8,}"),
        re.compile(r"AIza[0-9A-Za-z_\-]{20,}"),
        re.compile(r"(?i)(authorization[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+"),
    ]

    def scrub(self, text: str) -> str:
        if not text:
            return text
        for pattern in self.PATTERNS:
            if pattern.groups:
                text = pattern.sub(lambda m: f"{m.group(1)}***", text)
            else:
                text = pattern.sub(lambda m: m.group(0)[:6] + "***", text)
        return text


scrubber = SecretScrubber()
