DOMAIN = "aspnet_identity_hash"

PROVIDER_ID = "aspnet-identity-hash"
LEGACY_HASH_ATTRIBUTE = "legacyPasswordHash"

# Credential type handled by the validator
CREDENTIAL_TYPE_PASSWORD = "password"
CREDENTIAL_CATEGORY = "basic-authentication"

CONF_NATIVE_ITERATIONS = "native_iterations"
CONF_MAX_ITERATIONS = "max_iterations"
CONF_ALLOW_FIXED_FORMAT = "allow_fixed_format"
CONF_LOG_MIGRATIONS = "log_migrations"

DEFAULT_NATIVE_ITERATIONS = 100_000
DEFAULT_MAX_ITERATIONS = 10_000_000
DEFAULT_ALLOW_FIXED_FORMAT = True
DEFAULT_LOG_MIGRATIONS = True

ATTR_USER = "user"
ATTR_PASSWORD = "password"
ATTR_HASH = "hash"

SERVICE_IMPORT_LEGACY_HASH = "import_legacy_hash"
SERVICE_DELETE_LEGACY_HASH = "delete_legacy_hash"

EVENT_PASSWORD_MIGRATED = f"{DOMAIN}_password_migrated"

ATTRIBUTES_STORAGE_VERSION = 1
ATTRIBUTES_STORAGE_KEY = f"{DOMAIN}_attributes"
CREDENTIALS_STORAGE_VERSION = 1
CREDENTIALS_STORAGE_KEY = f"{DOMAIN}_credentials"

AUDIT_DIR = "migrations"

# Hard ceiling on legacy iteration counts, applied even without a configured bound
MAX_ITERATIONS_LIMIT = 100_000_000
