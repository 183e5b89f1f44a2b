from .environment import emulator_host, load_config, verify_gcp_credentials
from .id_generator import create_client_uid

__all__ = [
    "create_client_uid",
    "emulator_host",
    "load_config",
    "verify_gcp_credentials",
]
