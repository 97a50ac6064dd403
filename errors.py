DIAGNOSTIC_MARKER = "<ldrx-run>"

ERROR_INTERPRETER = 0
ERROR_CHARACTER = 1
ERROR_SYNTAX = 2

ERROR_NAMES = [
    "Interpreter Error",
    "Unexpected character",
    "Invalid syntax",
]


class LdrxError(Exception):
    pass


class LdrxSyntaxError(LdrxError):
    """Lexing or parsing stopped at `position`; nothing gets executed."""

    def __init__(self, kind: int, text, position: int):
        self.kind = kind
        self.text = "" if text is None else str(text)
        self.position = position
        super().__init__(f"{ERROR_NAMES[kind]} at '{self.text}' (char {position})")

    @property
    def category(self) -> str:
        return ERROR_NAMES[self.kind]

    def format(self, source_name: str = "") -> str:
        return (
            f"ERROR [{self.category}] At '{self.text}' "
            f"At {source_name}{DIAGNOSTIC_MARKER}char:{self.position}"
        )


class LdrxRuntimeError(LdrxError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def format(self, source_name: str = "") -> str:
        return f"ERROR [Runtime Error] {self.message} At {source_name}"
