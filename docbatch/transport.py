"""
Construction of the generated Firestore RPC client.

The GAPIC ``FirestoreClient`` handles channels, credentials and retries;
this module only decides how to build it (production endpoint or emulator).
"""
import logging
from typing import Optional

import grpc
from google.api_core.client_options import ClientOptions
from google.auth.credentials import Credentials
from google.cloud.firestore_v1.services.firestore import FirestoreClient
from google.cloud.firestore_v1.services.firestore.transports import \
    FirestoreGrpcTransport

from .config.settings import ClientSettings

logger = logging.getLogger(__name__)

# The emulator accepts any bearer token; "owner" bypasses security rules.
EMULATOR_AUTH_METADATA = ("authorization", "Bearer owner")


def create_firestore_rpc(settings: ClientSettings, credentials: Optional[Credentials] = None) -> FirestoreClient:
    """Build a FirestoreClient for the endpoint described by ``settings``."""
    if settings.emulator_host:
        logger.info(f"Connecting to Firestore emulator at {settings.emulator_host}")
        channel = grpc.insecure_channel(settings.emulator_host)
        return FirestoreClient(transport=FirestoreGrpcTransport(host=settings.emulator_host, channel=channel))

    client_options = None
    if settings.api_endpoint:
        client_options = ClientOptions(api_endpoint=settings.api_endpoint)
    logger.debug(f"Creating Firestore RPC client (endpoint={settings.api_endpoint or 'default'})")
    return FirestoreClient(credentials=credentials, client_options=client_options)
