# file_search_qa/slides/exporter.py

import logging
import time
from typing import Dict, List, Optional

import requests
from google.auth import exceptions as auth_exceptions
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from file_search_qa.config import SLIDES_SCOPES, Settings
from file_search_qa.errors import ConfigurationError, RemoteFailure, TransportError
from file_search_qa.models import SlideDeck


logger = logging.getLogger(__name__)


SLIDES_API_URL = "https://slides.googleapis.com/v1/presentations"

PRESENTATION_URL = "https://docs.google.com/presentation/d/{presentation_id}/edit"

REQUEST_TIMEOUT_SECONDS = 30

TITLE_SLIDE_ID = "title_slide"

# Slides API status -> (error code, user-facing message)
_STATUS_ERRORS = {
    400: ("INVALID_REQUEST", "Invalid request - check slide structure"),
    403: ("PERMISSION_DENIED", "Permission denied - check service account scopes"),
    429: ("RATE_LIMITED", "Rate limit exceeded - try again later"),
}


def presentation_url(presentation_id: str) -> str:
    return PRESENTATION_URL.format(presentation_id=presentation_id)


def build_batch_requests(deck: SlideDeck) -> List[Dict]:
    """
    Translate a deck into a Slides batchUpdate request list.

    Title slide at index 0, then one TITLE_AND_BODY slide per content
    slide. Text goes into the layout's standard placeholders:
    `<slide>.p1-t1` for the title, `<slide>.p2` for the body.
    """

    requests_: List[Dict] = [
        {
            "createSlide": {
                "objectId": TITLE_SLIDE_ID,
                "insertionIndex": 0,
                "slideLayoutReference": {"predefinedLayout": "TITLE"},
            }
        }
    ]

    for index, slide in enumerate(deck.slides):

        slide_id = f"slide_{index}"

        requests_.append(
            {
                "createSlide": {
                    "objectId": slide_id,
                    "insertionIndex": index + 1,
                    "slideLayoutReference": {"predefinedLayout": "TITLE_AND_BODY"},
                }
            }
        )

        requests_.append(
            {
                "insertText": {
                    "objectId": f"{slide_id}.p1-t1",
                    "insertionIndex": 0,
                    "text": slide.title,
                }
            }
        )

        requests_.append(
            {
                "insertText": {
                    "objectId": f"{slide_id}.p2",
                    "insertionIndex": 0,
                    "text": "\n".join(f"• {point}" for point in slide.bullet_points),
                }
            }
        )

    return requests_


class SlidesExporter:
    """
    Google Slides API client authenticated with a service account.

    Blocking (requests); callers run it off the event loop.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):

        self._credentials_file = settings.google_application_credentials
        self._session = session

    @property
    def configured(self) -> bool:
        return self._session is not None or bool(self._credentials_file)

    def _get_session(self) -> requests.Session:

        if self._session is not None:
            return self._session

        if not self._credentials_file:
            raise ConfigurationError(
                "GOOGLE_APPLICATION_CREDENTIALS environment variable missing"
            )

        try:

            credentials = service_account.Credentials.from_service_account_file(
                self._credentials_file,
                scopes=SLIDES_SCOPES,
            )

        except (OSError, ValueError) as e:

            raise ConfigurationError(
                f"Cannot load service account credentials: {e}"
            ) from e

        self._session = AuthorizedSession(credentials)

        logger.info("Slides session initialized")

        return self._session

    def export(self, deck: SlideDeck) -> str:
        """Create the presentation, fill it, return its id."""

        start = time.time()

        created = self._post(SLIDES_API_URL, {"title": deck.title})

        presentation_id = created["presentationId"]

        self._post(
            f"{SLIDES_API_URL}/{presentation_id}:batchUpdate",
            {"requests": build_batch_requests(deck)},
        )

        logger.info(
            "Presentation created",
            extra={
                "presentation_id": presentation_id,
                "slide_count": len(deck.slides),
                "latency_seconds": round(time.time() - start, 3),
            },
        )

        return presentation_id

    def _post(self, url: str, body: Dict) -> Dict:

        session = self._get_session()

        try:
            response = session.post(url, json=body, timeout=REQUEST_TIMEOUT_SECONDS)

        except auth_exceptions.GoogleAuthError as e:
            raise RemoteFailure(
                f"Slides authentication failed: {e}", code="AUTH_FAILED"
            ) from e

        except requests.RequestException as e:
            raise TransportError(f"Slides API unreachable: {e}") from e

        if response.status_code >= 400:

            logger.error(
                "Slides API error",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )

            code, message = _STATUS_ERRORS.get(
                response.status_code,
                ("SLIDES_ERROR", f"Slides creation failed: HTTP {response.status_code}"),
            )

            raise RemoteFailure(
                message, code=code, detail={"status_code": response.status_code}
            )

        return response.json()
