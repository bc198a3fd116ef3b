"""Unit tests for the exported trip document schema."""

import json
from pathlib import Path

from scripts.export_schemas import main as export_schemas
from tripshare.app.models import ExportedDestination, ExportedTransport, ExportedTrip


def test_schema_uses_file_format_keys() -> None:
    """Schema properties use the camelCase keys of the file format."""
    schema = ExportedTrip.model_json_schema(by_alias=True)

    assert set(schema["properties"]) == {"title", "startDate", "departure", "destinations", "return"}
    assert set(schema["required"]) == {"title", "destinations"}


def test_nested_blocks_use_camel_case() -> None:
    """Transport keys are camelCase; destination requires city and duration."""
    transport = ExportedTransport.model_json_schema(by_alias=True)
    destination = ExportedDestination.model_json_schema(by_alias=True)

    assert "leaveAccommodationTime" in transport["properties"]
    assert "bookingNumber" in transport["properties"]
    assert set(destination["required"]) == {"city", "duration"}


def test_export_script_writes_schema(tmp_path: Path) -> None:
    """The export script writes a loadable schema file."""
    path = export_schemas(tmp_path / "schemas")

    with open(path) as f:
        written = json.load(f)

    assert written == ExportedTrip.model_json_schema(by_alias=True)
