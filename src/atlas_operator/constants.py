"""Constants for the Atlas Operator."""

# API Group
API_GROUP = "atlas.mongodb.com"
API_GROUP_VERSION = f"{API_GROUP}/v1"
API_VERSION = "v1"

# Resource Kinds
KIND_PROJECT = "AtlasProject"
KIND_IP_ACCESS_LIST = "AtlasIPAccessList"
KIND_SECRET = "Secret"

# Plurals
PLURAL_PROJECT = "atlasprojects"
PLURAL_IP_ACCESS_LIST = "atlasipaccesslists"

# Labels
LABEL_RESOURCE_VERSION = "mongodb.com/atlas-resource-version"
LABEL_CREDENTIALS_TYPE = "atlas.mongodb.com/type"
LABEL_CREDENTIALS_VALUE = "credentials"

# Annotations
ANNOTATION_RECONCILIATION_POLICY = "mongodb.com/atlas-reconciliation-policy"
RECONCILIATION_POLICY_SKIP = "skip"
ANNOTATION_RESOURCE_POLICY = "mongodb.com/atlas-resource-policy"
RESOURCE_POLICY_KEEP = "keep"
RESOURCE_POLICY_DELETE = "delete"
ANNOTATION_RESOURCE_VERSION_OVERRIDE = "mongodb.com/atlas-resource-version-policy"
RESOURCE_VERSION_ALLOW = "allow"
ANNOTATION_ACCESS_TOKEN = "atlas.mongodb.com/access-token"
ANNOTATION_EXTERNAL_PREFIX = "mongodb.com/external-"
ANNOTATION_REAPPLY_PERIOD = "mongodb.com/reapply-period"
ANNOTATION_REAPPLY_TIMESTAMP = "mongodb.com/reapply-timestamp"

# Finalizers
FINALIZER = "mongodb.com/finalizer"

# Shortest accepted reapply period, in seconds
MIN_REAPPLY_PERIOD = 3600

# Field Manager
FIELD_MANAGER = "atlas-operator"

# Secret data keys
SECRET_ORG_ID = "orgId"
SECRET_PUBLIC_KEY = "publicApiKey"
SECRET_PRIVATE_KEY = "privateApiKey"
SECRET_CLIENT_ID = "clientId"
SECRET_CLIENT_SECRET = "clientSecret"
SECRET_ACCESS_TOKEN = "accessToken"
SECRET_EXPIRY = "expiry"

# Condition Types
COND_READY = "Ready"
COND_STATE = "State"
COND_RESOURCE_VERSION = "ResourceVersionStatus"

# Ready Reasons
REASON_SETTLED = "Settled"
REASON_PENDING = "Pending"
REASON_ERROR = "Error"
REASON_RESOURCE_VERSION_INVALID = "ResourceVersionInvalid"
REASON_RESOURCE_VERSION_VALID = "ResourceVersionValid"
REASON_GOV_UNSUPPORTED = "AtlasGovUnsupported"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_RESOURCE_VERSION_INVALID = "ResourceVersionInvalid"
EVENT_REASON_UNSUPPORTED = "Unsupported"
EVENT_REASON_FINALIZER_REMOVED = "FinalizerRemoved"
EVENT_REASON_TOKEN_REFRESHED = "TokenRefreshed"
EVENT_REASON_TOKEN_FAILED = "TokenRefreshFailed"

# Government cloud domain marker
ATLAS_GOV_DOMAIN = "mongodbgov.com"
