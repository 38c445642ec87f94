"""ChronoFlow contract bindings and deployment exports."""

from .client import (
    ChainClient,
    ContractHandle,
    init_public_client,
    init_wallet_client,
    get_contract,
    get_stream_nft_contract,
    get_chronoflow_core_contract,
    get_marketplace_contract,
    get_stream,
    get_listing,
    get_next_stream_id,
    create_stream,
)
from .config import ChronoFlowConfig, NetworkConfig, build_default_config
from .contracts import (
    ContractName,
    InterfaceDescription,
    INTERFACES,
    DEFAULT_ADDRESSES,
    ZERO_ADDRESS,
    get_interface,
    get_default_address,
)
from .deployment import (
    DeploymentModule,
    DeploymentExecutor,
    DeploymentResult,
    build_chronoflow_module,
    deploy_chronoflow,
)
from .exceptions import (
    ChronoFlowError,
    DeploymentError,
    SignerRequiredError,
    UnresolvedFutureError,
)
from .manifest import build_manifest, write_manifest
from .models import ListingRecord, StreamRecord

__all__ = [
    "ChainClient",
    "ContractHandle",
    "init_public_client",
    "init_wallet_client",
    "get_contract",
    "get_stream_nft_contract",
    "get_chronoflow_core_contract",
    "get_marketplace_contract",
    "get_stream",
    "get_listing",
    "get_next_stream_id",
    "create_stream",
    "ChronoFlowConfig",
    "NetworkConfig",
    "build_default_config",
    "ContractName",
    "InterfaceDescription",
    "INTERFACES",
    "DEFAULT_ADDRESSES",
    "ZERO_ADDRESS",
    "get_interface",
    "get_default_address",
    "DeploymentModule",
    "DeploymentExecutor",
    "DeploymentResult",
    "build_chronoflow_module",
    "deploy_chronoflow",
    "ChronoFlowError",
    "DeploymentError",
    "SignerRequiredError",
    "UnresolvedFutureError",
    "build_manifest",
    "write_manifest",
    "ListingRecord",
    "StreamRecord",
]
