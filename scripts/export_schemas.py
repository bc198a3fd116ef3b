"""Export the JSON schema of the portable trip document."""

import json
from pathlib import Path

from tripshare.app.models import ExportedTrip


def main(schemas_dir: Path = Path("docs/schemas")) -> Path:
    """Export the trip document schema to docs/schemas/."""
    schemas_dir.mkdir(parents=True, exist_ok=True)

    # Aliased keys are the on-disk field names
    trip_schema = ExportedTrip.model_json_schema(by_alias=True)
    trip_path = schemas_dir / "ExportedTrip.schema.json"
    with open(trip_path, "w") as f:
        json.dump(trip_schema, f, indent=2)
    print(f"Exported ExportedTrip schema to {trip_path}")

    return trip_path


if __name__ == "__main__":
    main()
