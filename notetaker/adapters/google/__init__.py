"""Google sign-in verification."""

from .verifier import GoogleIdentityVerifier, decode_mock_token, encode_mock_token

__all__ = ["GoogleIdentityVerifier", "encode_mock_token", "decode_mock_token"]
