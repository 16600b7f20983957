"""AWS session construction and botocore error translation."""

from collections.abc import Mapping
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from s3vector_nodes.config import AWSSettings
from s3vector_nodes.exceptions import ErrorCode, ProviderAuthError, VectorNodesError

# botocore error codes that mean the caller is not allowed to do this
AUTH_ERROR_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "ExpiredToken",
        "ExpiredTokenException",
        "InvalidClientTokenId",
        "InvalidSignatureException",
        "SignatureDoesNotMatch",
        "UnrecognizedClientException",
    }
)

# Keys used by the host's stored AWS credential
_HOST_CREDENTIAL_KEYS = {
    "accessKeyId": "access_key_id",
    "secretAccessKey": "secret_access_key",
    "sessionToken": "session_token",
    "region": "region",
}


def aws_settings_from_credentials(
    credentials: Mapping[str, Any] | None,
    region: str | None = None,
) -> AWSSettings:
    """Build AWS settings from a host credential mapping.

    Blank values are skipped so the environment (or boto3's default chain)
    can still supply them. An explicit ``region`` wins over the credential's.
    """
    values: dict[str, Any] = {}
    for host_key, field in _HOST_CREDENTIAL_KEYS.items():
        value = (credentials or {}).get(host_key)
        if value:
            values[field] = value
    if region:
        values["region"] = region
    return AWSSettings(**values)


def create_session(settings: AWSSettings) -> boto3.session.Session:
    """Create a boto3 session scoped to one set of credentials."""
    secret = settings.secret_access_key
    token = settings.session_token
    return boto3.session.Session(
        aws_access_key_id=settings.access_key_id,
        aws_secret_access_key=secret.get_secret_value() if secret else None,
        aws_session_token=token.get_secret_value() if token else None,
        region_name=settings.region,
    )


def client_error_code(error: Exception) -> str:
    """Return the provider error code, or the exception class name."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return type(error).__name__


def client_error_message(error: Exception) -> str:
    """Return the provider's own error message."""
    if isinstance(error, ClientError):
        message = error.response.get("Error", {}).get("Message")
        if message:
            return str(message)
    return str(error)


def is_auth_error(error: Exception) -> bool:
    return client_error_code(error) in AUTH_ERROR_CODES


def translate_client_error(
    error: ClientError | BotoCoreError,
    error_cls: type[VectorNodesError],
    message: str,
    code: ErrorCode,
    details: dict[str, Any] | None = None,
) -> VectorNodesError:
    """Map a boto error onto the application hierarchy.

    Authentication and permission failures become ProviderAuthError with
    the provider message untouched; everything else becomes ``error_cls``.
    """
    details = {
        **(details or {}),
        "provider_code": client_error_code(error),
        "error": client_error_message(error),
    }
    if is_auth_error(error):
        return ProviderAuthError(client_error_message(error), details=details)
    return error_cls(
        f"{message}: {client_error_message(error)}",
        code=code,
        details=details,
    )
