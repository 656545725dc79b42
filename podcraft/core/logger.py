from pathlib import Path
from datetime import datetime
from typing import Any, Optional

from ..constants import PARSE_FAILURE_LOG_FILENAME


class ParseFailureLog:
    """
    Appends unrecoverable model responses and their diagnostics to a file.
    """
    def __init__(self, log_dir: Path):
        self.log_dir = Path(log_dir).expanduser()
        self.log_file = self.log_dir / PARSE_FAILURE_LOG_FILENAME
        self._ensure_log_file()

    def _ensure_log_file(self):
        if not self.log_file.exists():
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "w") as f:
                f.write("# Response parse failures\n")
                f.write(f"# Created at: {datetime.now().isoformat()}\n\n")

    def log(self, context: str, raw_response: str, diagnostics: Any, error: Optional[str] = None):
        """
        Log a failed parse in human-readable text format.
        """
        timestamp = datetime.now().isoformat()

        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write("=" * 80 + "\n")
            f.write(f"[{timestamp}] {context}\n")
            f.write("=" * 80 + "\n\n")

            if error:
                f.write(f"ERROR: {error}\n\n")

            f.write("DIAGNOSTICS:\n")
            f.write("-" * 80 + "\n")
            f.write(self._format_data(diagnostics))
            f.write("\n\n")

            f.write("RAW RESPONSE:\n")
            f.write("-" * 80 + "\n")
            f.write(raw_response)
            f.write("\n\n\n")

    def _format_data(self, data: Any, indent: int = 0) -> str:
        """
        Format data in a human-readable way with indentation.
        """
        prefix = "  " * indent

        if data is None:
            return f"{prefix}None"

        if isinstance(data, (bool, int, float, str)):
            return f"{prefix}{data!r}" if isinstance(data, str) else f"{prefix}{data}"

        if hasattr(data, "__dataclass_fields__"):
            data = {name: getattr(data, name) for name in data.__dataclass_fields__}

        if isinstance(data, dict):
            if not data:
                return f"{prefix}{{}}"

            lines = []
            for key, value in data.items():
                if isinstance(value, (dict, list)) and value:
                    lines.append(f"{prefix}{key}:")
                    lines.append(self._format_data(value, indent + 1))
                else:
                    formatted_value = self._format_data(value, 0).strip()
                    lines.append(f"{prefix}{key}: {formatted_value}")
            return "\n".join(lines)

        if isinstance(data, (list, tuple)):
            if not data:
                return f"{prefix}[]"

            lines = []
            for i, item in enumerate(data):
                if isinstance(item, (dict, list)):
                    lines.append(f"{prefix}[{i}]:")
                    lines.append(self._format_data(item, indent + 1))
                else:
                    formatted_item = self._format_data(item, 0).strip()
                    lines.append(f"{prefix}[{i}]: {formatted_item}")
            return "\n".join(lines)

        # Fallback for other objects
        return f"{prefix}{str(data)}"
