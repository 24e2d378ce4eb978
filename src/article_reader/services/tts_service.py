import logging
from typing import Optional

import httpx

from ..errors import SynthesisError
from ..schemas.settings import CredentialValidation

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://texttospeech.googleapis.com/v1"


class GoogleCloudTTS:
    """
    Client for the Google Cloud Text-to-Speech REST API.

    Synthesis is request/response: one chunk of text in, one complete MP3
    buffer (base64) out. The API key travels as a query parameter, so it is
    passed per call rather than stored on the client.

    Uses a singleton httpx.AsyncClient for connection pooling unless a client
    is injected.
    """

    # Singleton HTTP client for connection pooling
    _http_client: Optional[httpx.AsyncClient] = None

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        audio_encoding: str = "MP3",
    ):
        self.base_url = str(base_url).rstrip("/")
        self._client = client
        self.audio_encoding = audio_encoding

    @classmethod
    def get_http_client(cls) -> httpx.AsyncClient:
        """Get singleton HTTP client for connection pooling."""
        if cls._http_client is None:
            cls._http_client = httpx.AsyncClient(timeout=30.0)
            logger.info("Created singleton httpx.AsyncClient for cloud TTS")
        return cls._http_client

    @classmethod
    async def close_http_client(cls) -> None:
        """Close the singleton HTTP client. Call on app shutdown."""
        if cls._http_client is not None:
            await cls._http_client.aclose()
            cls._http_client = None
            logger.info("Closed cloud TTS HTTP client")

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or self.get_http_client()

    async def synthesize(self, text: str, voice_id: str, credential: str) -> str:
        """
        Synthesize one chunk of text and return base64-encoded audio.

        The language code is derived from the voice id (``sv-SE-Wavenet-A``
        -> ``sv-SE``). Speaking rate is fixed at 1.0.
        """
        payload = {
            "input": {"text": text},
            "voice": {"languageCode": voice_id[:5], "name": voice_id},
            "audioConfig": {
                "audioEncoding": self.audio_encoding,
                "speakingRate": 1.0,
            },
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/text:synthesize",
                params={"key": credential},
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error(f"Cloud TTS request failed: {e}")
            raise SynthesisError(f"Network error: {e}") from e

        if response.status_code != 200:
            message = _error_message(response)
            logger.error(f"Cloud TTS error {response.status_code}: {message}")
            raise SynthesisError(message)

        audio_content = response.json().get("audioContent")
        if not audio_content:
            raise SynthesisError("No audio content received")

        logger.debug(f"Synthesized {len(text)} chars with {voice_id}")
        return audio_content

    async def validate_credential(self, credential: str) -> CredentialValidation:
        """Probe the voices endpoint to check whether an API key is accepted."""
        try:
            response = await self.client.get(
                f"{self.base_url}/voices",
                params={"key": credential},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Credential validation request failed: {e}")
            return CredentialValidation(valid=False, error="Network error")

        if response.status_code == 200:
            return CredentialValidation(valid=True)
        return CredentialValidation(valid=False, error=_error_message(response))


def _error_message(response: httpx.Response) -> str:
    """Extract ``error.message`` from a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"Error {response.status_code}"


__all__ = ["GoogleCloudTTS"]
