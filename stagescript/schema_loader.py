from pathlib import Path
import json


def load_schema(name: str):
    schema_path = Path(__file__).resolve().parent / "contracts" / name
    if not schema_path.exists():
        raise FileNotFoundError(f"Missing contract schema: {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))
