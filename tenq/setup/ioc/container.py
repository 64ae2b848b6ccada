"""
Dishka DI Container Setup.

- Registers all dependencies (engine, store, LLM client, breaker, handlers)
- Maps abstract ports to concrete implementations
- Manages lifecycle: APP = one per process, REQUEST = one per HTTP request

Flow:
  Container → provides → SqlAlchemyConversationStore → to → SubmitResponseHandler
                                    ↓
                            uses ConversationStore port

The AsyncOpenAI client and the circuit breaker are APP-scoped: every request
shares one breaker, so failures seen by one request protect the others.
Tests swap pieces by passing an extra provider to create_container(); the
last provider registering a type wins.
"""

from typing import AsyncIterable

from dishka import AsyncContainer, Provider, Scope, make_async_container, provide
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tenq.application.commands.conversations import (
    CreateConversationHandler,
    DeleteConversationHandler,
    RegenerateQuestionHandler,
    RegenerateSummaryHandler,
    RetryQuestionHandler,
    RetrySummaryHandler,
    SubmitResponseHandler,
)
from tenq.application.queries.conversations import (
    ExportConversationHandler,
    GetConversationHandler,
    ListConversationsHandler,
)
from tenq.application.queries.health import DeepPingHandler
from tenq.config.commands import CommandCatalog, load_commands
from tenq.config.settings import Config, get_config
from tenq.domain.entities.conversation import ConversationLimits
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator
from tenq.infrastructure.persistence import (
    SqlAlchemyConversationStore,
    create_engine,
    create_session_factory,
)
from tenq.services.llm_client import AsyncCircuitBreaker, build_openai_client
from tenq.services.text_generation import TextGenerationClient


class AppProvider(Provider):
    """
    Application dependency provider.

    `config` is a Config class (see config/settings.py); tests pass a
    subclass pointing at a temporary database.
    """

    def __init__(self, config: type[Config] = Config):
        super().__init__()
        self.config = config

    # ==================== DATABASE ====================

    @provide(scope=Scope.APP)
    async def get_engine(self) -> AsyncIterable[AsyncEngine]:
        """Engine is disposed when the container closes."""
        engine = create_engine(self.config.DATABASE_URL, echo=self.config.DATABASE_ECHO)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    # ==================== TEXT GENERATION ====================

    @provide(scope=Scope.APP)
    async def get_openai_client(self) -> AsyncIterable[AsyncOpenAI]:
        client = build_openai_client(
            api_key=self.config.OPENAI_KEY,
            timeout_seconds=self.config.OPENAI_TIMEOUT_SECONDS,
            connect_timeout_seconds=self.config.OPENAI_CONNECT_TIMEOUT_SECONDS,
            max_retries=self.config.OPENAI_MAX_RETRIES,
        )
        yield client
        await client.close()

    @provide(scope=Scope.APP)
    def get_circuit_breaker(self) -> AsyncCircuitBreaker:
        return AsyncCircuitBreaker(
            error_threshold=self.config.OPENAI_CIRCUIT_ERROR_THRESHOLD,
            volume_threshold=self.config.OPENAI_CIRCUIT_VOLUME_THRESHOLD,
            reset_timeout=self.config.OPENAI_CIRCUIT_RESET_TIMEOUT_SECONDS,
            rolling_window=self.config.OPENAI_CIRCUIT_ROLLING_WINDOW_SECONDS,
        )

    @provide(scope=Scope.APP)
    def get_command_catalog(self) -> CommandCatalog:
        return load_commands(self.config.COMMANDS_FILE)

    @provide(scope=Scope.APP)
    def get_text_generator(
        self,
        client: AsyncOpenAI,
        breaker: AsyncCircuitBreaker,
        catalog: CommandCatalog,
    ) -> TextGenerator:
        """
        Provide the TextGenerator port.

        - Return type is ABSTRACT (TextGenerator)
        - Implementation is CONCRETE (TextGenerationClient)
        """
        return TextGenerationClient(
            client=client,
            breaker=breaker,
            catalog=catalog,
            api_key=self.config.OPENAI_KEY,
            model=self.config.OPENAI_MODEL,
            temperature=self.config.OPENAI_TEMPERATURE,
            question_max_tokens=self.config.QUESTION_MAX_TOKENS,
            summary_max_tokens=self.config.SUMMARY_MAX_TOKENS,
            call_timeout=self.config.OPENAI_CALL_TIMEOUT_SECONDS,
            health_timeout=self.config.OPENAI_CONNECT_TIMEOUT_SECONDS,
        )

    @provide(scope=Scope.APP)
    def get_conversation_limits(self) -> ConversationLimits:
        return ConversationLimits(
            max_title_length=self.config.MAX_TITLE_LENGTH,
            max_response_length=self.config.MAX_RESPONSE_LENGTH,
            max_question_length=self.config.MAX_QUESTION_LENGTH,
            max_summary_length=self.config.MAX_SUMMARY_LENGTH,
        )

    # ==================== REPOSITORIES ====================

    @provide(scope=Scope.REQUEST)
    def get_conversation_store(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> ConversationStore:
        """
        Provide ConversationStore implementation.

        - Return type is ABSTRACT (ConversationStore)
        - Implementation is CONCRETE (SqlAlchemyConversationStore)
        - Each store operation opens its own session from the shared factory
        """
        return SqlAlchemyConversationStore(session_factory)

    # ==================== HANDLERS ====================

    @provide(scope=Scope.REQUEST)
    def get_create_conversation_handler(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits,
    ) -> CreateConversationHandler:
        return CreateConversationHandler(store, generator, limits)

    @provide(scope=Scope.REQUEST)
    def get_submit_response_handler(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits,
    ) -> SubmitResponseHandler:
        return SubmitResponseHandler(store, generator, limits)

    @provide(scope=Scope.REQUEST)
    def get_regenerate_question_handler(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits,
    ) -> RegenerateQuestionHandler:
        return RegenerateQuestionHandler(store, generator, limits)

    @provide(scope=Scope.REQUEST)
    def get_regenerate_summary_handler(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits,
    ) -> RegenerateSummaryHandler:
        return RegenerateSummaryHandler(store, generator, limits)

    @provide(scope=Scope.REQUEST)
    def get_retry_question_handler(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits,
    ) -> RetryQuestionHandler:
        return RetryQuestionHandler(store, generator, limits)

    @provide(scope=Scope.REQUEST)
    def get_retry_summary_handler(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits,
    ) -> RetrySummaryHandler:
        return RetrySummaryHandler(store, generator, limits)

    @provide(scope=Scope.REQUEST)
    def get_delete_conversation_handler(
        self, store: ConversationStore
    ) -> DeleteConversationHandler:
        return DeleteConversationHandler(store)

    @provide(scope=Scope.REQUEST)
    def get_list_conversations_handler(
        self, store: ConversationStore
    ) -> ListConversationsHandler:
        return ListConversationsHandler(store)

    @provide(scope=Scope.REQUEST)
    def get_get_conversation_handler(
        self, store: ConversationStore
    ) -> GetConversationHandler:
        return GetConversationHandler(store)

    @provide(scope=Scope.REQUEST)
    def get_export_conversation_handler(
        self, store: ConversationStore
    ) -> ExportConversationHandler:
        return ExportConversationHandler(store)

    @provide(scope=Scope.REQUEST)
    def get_deep_ping_handler(
        self, store: ConversationStore, generator: TextGenerator
    ) -> DeepPingHandler:
        return DeepPingHandler(store, generator)


def create_container(*providers: Provider) -> AsyncContainer:
    """
    Create and configure the DI container.

    - Without arguments: AppProvider with the Config selected by APP_ENV
    - With providers: used as given, in order (later ones override earlier ones)
    """
    return make_async_container(*(providers or (AppProvider(get_config()),)))
