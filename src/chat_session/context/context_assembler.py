"""
Context assembly.

Turns a stored history plus the new message into the oracle input for
one request. Pure: nothing here touches storage.
"""
from typing import List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from ..models import ContextWindow, ConversationHistory, Role

DEFAULT_INTRO_TEMPLATE = "My name is {display_name}. {message}"


class ContextAssembler:
    """
    Builds the per-request context window.

    The full history is replayed verbatim. On a user's very first message
    the text sent to the oracle is prefixed with an introduction so the
    model learns the user's name; the stored user turn keeps the raw text.
    """

    def __init__(self, intro_template: str = DEFAULT_INTRO_TEMPLATE):
        """
        :param intro_template: Format string with {display_name} and {message}
        """
        self._intro_template = intro_template

    def build_context(
        self,
        history: ConversationHistory,
        new_message: str,
        display_name: str,
    ) -> ContextWindow:
        if history.is_new:
            effective = self._intro_template.format(
                display_name=display_name, message=new_message
            )
        else:
            effective = new_message
        return ContextWindow(history=tuple(history.turns), effective_message=effective)


def to_langchain_messages(turns) -> List[BaseMessage]:
    """Map stored turns onto LangChain chat messages, order preserved."""
    messages: List[BaseMessage] = []
    for turn in turns:
        if turn.role == Role.USER:
            messages.append(HumanMessage(content=turn.text))
        else:
            messages.append(AIMessage(content=turn.text))
    return messages
