"""Constants for the STACKIT Cluster API Operator."""

# Infrastructure API group
API_GROUP = "infrastructure.cluster.x-k8s.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Cluster API core group
CAPI_GROUP = "cluster.x-k8s.io"
CAPI_VERSION = "v1beta1"
CAPI_GROUP_VERSION = f"{CAPI_GROUP}/{CAPI_VERSION}"

# Resource Kinds
KIND_STACKIT_CLUSTER = "STACKITCluster"
KIND_STACKIT_MACHINE = "STACKITMachine"
KIND_CLUSTER = "Cluster"
KIND_MACHINE = "Machine"
KIND_SECRET = "Secret"

# Resource plurals
PLURAL_STACKIT_CLUSTERS = "stackitclusters"
PLURAL_STACKIT_MACHINES = "stackitmachines"
PLURAL_CLUSTERS = "clusters"
PLURAL_MACHINES = "machines"

# Labels
LABEL_CLUSTER_NAME = f"{CAPI_GROUP}/cluster-name"
LABEL_ENVIRONMENT_NAME = "environment.stackit.cloud"
LABEL_ENVIRONMENT_VALUE = "capi-stackit"

# Annotations
ANNOTATION_PAUSED = f"{CAPI_GROUP}/paused"

# Finalizers
FINALIZER = f"{API_GROUP}/stackit"
SECRET_FINALIZER = f"secret.{API_GROUP}/stackit"
DEPRECATED_SECRET_FINALIZER = "stackitcluster"

# Field Manager
FIELD_MANAGER = "stackit-capi-operator"
CONTROLLER_NAME = "stackit-capi-operator"

# Condition Types
COND_READY = "Ready"
COND_CREDENTIALS_READY = "CredentialsReady"
COND_PAUSED = "Paused"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_RECONCILE_PAUSED = "ReconcilePaused"

# STACKIT API defaults
DEFAULT_LOADBALANCER_ENDPOINT = "https://load-balancer.api.stackit.cloud"
DEFAULT_REGION = "eu01"
