import os
import json
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from dbtunnel.utils.exceptions import InvalidRequestError


def _handle_json_duplicates(pairs):
    result = {}
    seen_counts = {}
    for key, value in pairs:
        if key in seen_counts:
            seen_counts[key] += 1
            result[f"{key}_{seen_counts[key]}"] = value
        else:
            seen_counts[key] = 1
            result[key] = value
    return result


def _reject_nonstandard_constant(value: str):
    raise ValueError(f"Invalid JSON constant: {value}")


def loads(text: str) -> Any:
    return json.loads(
        text,
        object_pairs_hook=_handle_json_duplicates,
        parse_constant=_reject_nonstandard_constant,
    )


def decode_item(item: Any) -> Dict[str, Any]:
    """
    Decode one driver item into a document mapping.

    - mapping            -> plain dict (same values)
    - JSON object text   -> parsed dict
    - list / JSON array  -> {"_array": [...]}
    - anything else      -> {"_value": item}
    """
    if isinstance(item, (bytes, bytearray)):
        item = item.decode("utf-8")

    if isinstance(item, str):
        stripped = item.strip()
        if stripped[:1] in ("{", "["):
            try:
                item = loads(stripped)
            except ValueError:
                return {"_value": item}

    if isinstance(item, Mapping):
        return {str(k): v for k, v in item.items()}

    if isinstance(item, (list, tuple)):
        return {"_array": list(item)}

    return {"_value": item}


class JSONAdapter:
    """
    Reads documents or rows from a JSON / JSONL file.

    Supports:
    - JSON object (one document)
    - JSON array of documents
    - JSONL (one document per line, bad lines skipped)
    """

    def __init__(self, file_path: str, sample_size: Optional[int] = None):
        self.file_path = file_path
        self.sample_size = sample_size

    def read(self) -> List[Dict[str, Any]]:
        records = [decode_item(r) for r in self._read_json_records()]
        if self.sample_size is not None:
            records = records[: self.sample_size]
        return records

    # ==================================================
    # JSON READER
    # ==================================================

    def _read_json_records(self) -> List[Any]:

        if not os.path.exists(self.file_path):
            raise InvalidRequestError(f"File not found: {self.file_path}")

        with open(self.file_path, "r", encoding="utf-8-sig") as f:
            raw = f.read().strip()

        if not raw:
            return []

        # Try full JSON
        try:
            parsed = loads(raw)

            if isinstance(parsed, list):
                return parsed

            return [parsed]

        except ValueError:
            pass

        # JSONL fallback
        records = []

        for line in raw.splitlines():
            line = line.strip()
            if not line:
                continue

            try:
                obj = loads(line)
            except ValueError:
                continue

            if isinstance(obj, dict):
                records.append(obj)

        return records
