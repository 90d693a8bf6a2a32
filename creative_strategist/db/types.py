from sqlalchemy import JSON, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

# Postgres gets native text[] / jsonb columns; other dialects (SQLite in tests) store JSON.
StringArray = JSON().with_variant(ARRAY(Text), "postgresql")
JsonBlob = JSON().with_variant(JSONB(), "postgresql")
