"""
Constants for the simport package.
"""

# Table names with special meaning to the resolver
PATIENT_TABLE = "patient"
PERSON_TABLE = "person"
PATIENT_IDENTIFIER_TABLE = "patient_identifier"
OBS_TABLE = "obs"
ENCOUNTER_TABLE = "encounter"
LOCATION_TABLE = "location"
FORM_TABLE = "form"
USERS_TABLE = "users"

# Foreign key column of encounter that points at a person acting as provider
PROVIDER_COLUMN = "provider_id"

# Supported template file extensions
TEMPLATE_JSON_EXTENSIONS = [".json"]
TEMPLATE_YAML_EXTENSIONS = [".yaml", ".yml"]

# Output file names
OUTPUT_FILES = {
    "json": "resolution.json",
    "yaml": "resolution.yaml",
    "mermaid_diagram": "table_dependencies.mmd",
}

DEFAULT_OUTPUT_FOLDER = "output"
DEFAULT_OUTPUT_FORMAT = "json"
