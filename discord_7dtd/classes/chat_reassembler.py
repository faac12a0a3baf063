from discord_7dtd.classes.line_classifier import Chat, classify, classify_tokens, tokenize

# For reasons unknown, the console sometimes cuts chat lines off at exactly this
# many characters and sends the rest as the next line.
TRUNCATED_LINE_LENGTH = 64


class _Buffering:
    def __repr__(self):
        return "BUFFERING"

    def __bool__(self):
        return False


BUFFERING = _Buffering()


class ChatReassembler:
    def __init__(self, truncated_length: int = TRUNCATED_LINE_LENGTH):
        self.truncated_length = truncated_length
        self.buffer = []

    @property
    def waiting(self) -> bool:
        return bool(self.buffer)

    def feed(self, line: str):
        """Classify `line`, holding back chat lines that look truncated.

        Returns BUFFERING when the line was stored; the following line is then
        glued onto it and the result is classified as chat, whatever it looks like.
        """
        if self.buffer:
            tokens = self.buffer + tokenize(line)
            self.buffer = []
            return classify_tokens(tokens, " ".join(tokens), force_chat=True)

        event = classify(line)
        if isinstance(event, Chat) and len(line) == self.truncated_length:
            self.buffer = tokenize(line)
            return BUFFERING
        return event

    def clear(self):
        self.buffer = []
