"""Summary service layer with Google Gemini integration."""

import asyncio
import logging

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from biblioteca.core.config import settings
from biblioteca.core.session import LibrarySession
from biblioteca.domains.library.listing import list_stored_files
from biblioteca.domains.summary.history import (
    HistoryStore,
    append_entry,
    now_millis,
    recent_window,
)
from biblioteca.domains.summary.prompt import (
    build_summary_prompt,
    collect_text_documents,
    prompt_for_storage,
)
from biblioteca.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIServiceError,
    AITimeoutError,
    map_ai_error,
)
from biblioteca.exceptions.library import (
    HistoryDecodeError,
    HistoryPersistError,
    NoDocumentsError,
    SummaryInProgressError,
)
from biblioteca.schemas.summary import ConversationEntry, HistoryView, SummaryResult
from biblioteca.shared.storage import SupabaseStorage

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_SUMMARY = "No se recibió respuesta del modelo. Intenta nuevamente."


class SummaryService:
    """Service class for library summaries using Google Gemini."""

    def __init__(self, storage: SupabaseStorage, history_store: HistoryStore | None = None):
        """Initialize summary service with a storage client.

        Args:
            storage: Storage client bound to the user's access token.
            history_store: History persistence; defaults to one over ``storage``.
        """
        self.storage = storage
        self.history = history_store or HistoryStore(storage)
        self.model = None

    def _initialize_client(self, model_id: str):
        """Initialize Google Gemini client for ``model_id``."""
        try:
            genai.configure(api_key=settings.gemini_api_key)
            self.model = genai.GenerativeModel(
                model_name=model_id,
                safety_settings={
                    HarmCategory.HARM_CATEGORY_HARASSMENT: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                    HarmCategory.HARM_CATEGORY_HATE_SPEECH: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                },
            )
            logger.info(f"Gemini client initialized with model: {model_id}")
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {str(e)}")
            raise AIConfigurationError(f"Failed to initialize AI service: {str(e)}") from e

    def _require_model_id(self) -> str:
        """Check summarization settings; they are only needed from here on."""
        if not settings.gemini_api_key:
            raise AIConfigurationError("Set GEMINI_API_KEY to generate summaries")
        model_id = settings.gemini_model_id
        if not model_id:
            raise AIConfigurationError("Set GEMINI_MODEL to generate summaries")
        return model_id

    async def load_history(self, session: LibrarySession) -> HistoryView:
        """Load the stored history into the session.

        A history document that exists but cannot be read leaves the session
        with an empty history and returns a notice instead of failing.
        """
        notice = None
        try:
            session.history = await self.history.load(session.user_id)
        except HistoryDecodeError as e:
            logger.warning(f"Ignoring unreadable history for user {session.user_id}: {e.message}")
            session.history = []
            notice = e.message
        session.history_loaded = True
        return self.history_view(session, notice)

    def history_view(self, session: LibrarySession, notice: str | None = None) -> HistoryView:
        """Most recent entries for display, newest first."""
        window = recent_window(session.history, settings.history_display_limit)
        return HistoryView(entries=list(reversed(window)), total=len(session.history), notice=notice)

    async def generate_summary(self, session: LibrarySession) -> SummaryResult:
        """Summarize the session's documents and record the result in the history.

        Raises:
            AIConfigurationError: If Gemini is not configured.
            NoDocumentsError: If the library is empty.
            SummaryInProgressError: If a summary is already running for the session.
        """
        model_id = self._require_model_id()

        if session.summary_in_flight:
            raise SummaryInProgressError()
        session.summary_in_flight = True

        try:
            if not session.files_loaded:
                session.files = await list_stored_files(self.storage, session.user_id)
                session.files_loaded = True
            if not session.files:
                raise NoDocumentsError()
            if not session.history_loaded:
                await self.load_history(session)

            if self.model is None:
                self._initialize_client(model_id)

            text_contents = await collect_text_documents(self.storage, session.files)
            previous = recent_window(session.history, settings.history_context_limit)
            prompt = build_summary_prompt(session.file_names, previous, text_contents)

            summary_text = await self._generate_content(prompt) or EMPTY_RESPONSE_SUMMARY

            entry = ConversationEntry(
                timestamp=now_millis(),
                files=tuple(session.file_names),
                prompt=prompt_for_storage(prompt),
                summary=summary_text,
            )
            session.summary = summary_text
            session.history = append_entry(session.history, entry)
            logger.info(
                f"Generated summary for user {session.user_id} over {len(entry.files)} documents"
            )

            history_saved = True
            notice = None
            try:
                await self.history.persist(session.user_id, session.history)
            except HistoryPersistError as e:
                history_saved = False
                notice = e.message

            return SummaryResult(
                summary=summary_text,
                entry=entry,
                model=model_id,
                history_saved=history_saved,
                notice=notice,
            )
        finally:
            session.summary_in_flight = False

    async def _generate_content(self, prompt: str) -> str:
        """Send ``prompt`` to Gemini and return the stripped response text."""
        try:
            call = self.model.generate_content_async(prompt)
            if settings.ai_request_timeout:
                response = await asyncio.wait_for(call, timeout=settings.ai_request_timeout)
            else:
                response = await call
        except TimeoutError:
            raise AITimeoutError("Summary request timed out") from None
        except AIServiceError:
            raise
        except Exception as e:
            logger.error(f"Gemini API call failed: {str(e)}")
            raise map_ai_error(e) from e

        return self._extract_text(response)

    @staticmethod
    def _extract_text(response) -> str:
        if response is None:
            return ""
        if not getattr(response, "candidates", None):
            feedback = getattr(response, "prompt_feedback", None)
            if feedback is not None and getattr(feedback, "block_reason", None):
                logger.error(f"Prompt blocked by Gemini: {feedback}")
                raise AIContentFilterError("Content was blocked by AI safety filters")
            return ""
        try:
            text = response.text
        except ValueError as e:
            # Candidate without text parts, e.g. finish_reason SAFETY.
            logger.warning(f"Gemini response carried no text: {str(e)}")
            return ""
        return (text or "").strip()
