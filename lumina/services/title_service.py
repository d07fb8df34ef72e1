import logging
from typing import List, Optional

logger = logging.getLogger("title_service")
logging.basicConfig(level=logging.INFO)

# A prompt + response = 2 messages, so three prompts = 6 messages.
TITLE_TRIGGER_COUNT = 6
CONTEXT_LIMIT = 2000
QUOTE_CHARS = "\"'`“”‘’"


def build_title_prompt(history: List[dict]) -> str:
    context = "\n".join(f"{m['role']}: {m['content']}" for m in history)
    return (
        "Generate a concise 3-word title for this obsidian-themed AI chat "
        f"based on this interaction context:\n{context[:CONTEXT_LIMIT]}\n\n"
        "Respond ONLY with the 3 words."
    )


def clean_title(raw: str) -> str:
    return (raw or "").strip().strip(QUOTE_CHARS).strip()


class TitleSummarizer:
    def __init__(self, store, generator):
        self.store = store
        self.generator = generator

    def maybe_summarize(self, conversation_id: str, message_count: int) -> Optional[str]:
        """
        Label the conversation once it reaches exactly six messages.
        Never raises: a failed title leaves the default one in place.
        """
        if message_count != TITLE_TRIGGER_COUNT:
            return None
        try:
            history = self.store.get_messages(conversation_id)
            title = clean_title(self.generator.complete_text(build_title_prompt(history)))
            if not title:
                logger.warning(f"Empty title generated for {conversation_id}")
                return None
            self.store.set_title(conversation_id, title)
            logger.info(f"Conversation {conversation_id} titled '{title}'")
            return title
        except Exception as e:
            logger.warning(f"Delayed title generation failed for {conversation_id}: {e}")
            return None
