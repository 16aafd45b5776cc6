"""Reply generation pinned to the user's language."""

import structlog

from ..domain.languages import name_for

logger = structlog.get_logger()

REPLY_TEMPERATURE = 0.7
REPLY_MAX_TOKENS = 512

SYSTEM_PROMPT = """You are LangLeo, a friendly and helpful multilingual chatbot assistant.
Provide natural, conversational, and helpful responses to user messages.
Be concise but informative. Show personality and warmth.
Respond ONLY in {language_name}. Do not use any other language.

IMPORTANT: When providing code examples, ALWAYS format them using markdown code blocks with the language specified:
```language
code here
```

For example:
- JavaScript: ```javascript
- Python: ```python
- Java: ```java
- HTML: ```html
- CSS: ```css
- SQL: ```sql

Always include the appropriate language identifier after the opening triple backticks."""


class ReplyGenerator:
    """Asks the completion engine for a reply written directly in the target language."""

    def __init__(self, engine):
        self.engine = engine

    def build_system_prompt(self, language: str) -> str:
        return SYSTEM_PROMPT.format(language_name=name_for(language))

    async def generate_reply(self, user_message: str, language: str = "en") -> str:
        """Return the reply text.

        Raises ``ProviderError`` (or its ``EmptyResponse`` subclass) when the
        engine cannot produce one.
        """
        reply = await self.engine.complete(
            self.build_system_prompt(language),
            user_message,
            temperature=REPLY_TEMPERATURE,
            max_tokens=REPLY_MAX_TOKENS,
        )
        logger.debug("reply_generated", language=language, reply_length=len(reply))
        return reply

    async def aclose(self) -> None:
        close = getattr(self.engine, "aclose", None)
        if close is not None:
            await close()
