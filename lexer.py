import string

from errors import LdrxSyntaxError, ERROR_CHARACTER


KEYWORDS = ("fn", "return", "print", "while", "if", "else", "rem", "ask")

# Order matters only for documentation; matching always tries the two-character form first.
OPERATORS = ("<=", ">=", "==", "!=", "&&", "||", "**", "*", "/", "%", "^", "+", "-", "&", "|", "<", ">")

QUOTES = "'\"`"

NAME_START = string.ascii_letters + "_"
NAME_CHARS = string.ascii_letters + string.digits + "_"
NUMBER_CHARS = string.digits + "."

PUNCTUATION = {
    ";": "SEMICOLON",
    ",": "COMMA",
    ":": "ASSIGN",
    "{": "KEYWORD",
    "}": "KEYWORD",
    "(": "OPEN",
    ")": "CLOSE",
}


class Token:
    def __init__(self, type, value="", position=0):
        self.type = type
        self.value = value
        self.position = position

    def __repr__(self):
        if self.value:
            return f"{self.type}({self.value})"
        return f"{self.type}"


def _is_numeral(text):
    try:
        float(text)
    except ValueError:
        return False
    return True


class Lexer:
    def __init__(self, text):
        self.text = text or ""
        self.pos = 0
        self.current_char = self.text[0] if self.text else None

    def advance(self, count=1):
        self.pos += count
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def error(self, text, position):
        raise LdrxSyntaxError(ERROR_CHARACTER, text, position)

    def skip_comment(self):
        # "\" runs to the end of the line
        while self.current_char and self.current_char not in "\r\n":
            self.advance()

    def read_operator(self):
        start = self.pos
        pair = self.text[start:start + 2]
        if len(pair) == 2 and pair in OPERATORS:
            self.advance(2)
            return Token("OPERATOR", pair, start)
        self.advance()
        return Token("OPERATOR", self.text[start], start)

    def read_identifier(self):
        start = self.pos
        while self.current_char and self.current_char in NAME_CHARS:
            self.advance()
        word = self.text[start:self.pos]
        if word in KEYWORDS:
            return Token("KEYWORD", word, start)
        return Token("NAME", word, start)

    def read_number(self):
        # grow the slice while it still parses as a number: "1.5" yes, "1.5." no
        start = self.pos
        end = start + 1
        while (
            end < len(self.text)
            and self.text[end] in NUMBER_CHARS
            and _is_numeral(self.text[start:end + 1])
        ):
            end += 1
        self.advance(end - start)
        return Token("NUMBER", self.text[start:end], start)

    def read_string(self):
        opening = self.pos
        quote = self.current_char
        self.advance()  # skip opening quote
        start = self.pos

        while self.current_char is not None and self.current_char != quote:
            self.advance()

        if self.current_char != quote:
            self.error(quote, opening)

        value = self.text[start:self.pos]
        self.advance()  # skip closing quote
        return Token("STRING", value, start)

    def get_next_token(self):
        while self.current_char:

            if self.current_char.isspace():
                self.advance()
                continue

            if self.current_char == "\\":
                self.skip_comment()
                continue

            if self.current_char in PUNCTUATION:
                tok = Token(PUNCTUATION[self.current_char], self.current_char, self.pos)
                self.advance()
                return tok

            if self.current_char in OPERATORS or self.text[self.pos:self.pos + 2] in OPERATORS:
                return self.read_operator()

            if self.current_char in NAME_START:
                return self.read_identifier()

            if self.current_char in string.digits:
                return self.read_number()

            if self.current_char in QUOTES:
                return self.read_string()

            self.error(self.current_char, self.pos)

        return Token("EOF", "", len(self.text) + 1)


def tokenize(text):
    """Lex the whole source; the returned list always ends with one EOF token."""
    lexer = Lexer(text)
    tokens = []
    while True:
        tok = lexer.get_next_token()
        tokens.append(tok)
        if tok.type == "EOF":
            return tokens


def render_tokens(tokens):
    parts = []
    for tok in tokens:
        if tok.type == "EOF":
            break
        if tok.type == "STRING":
            quote = next((q for q in QUOTES if q not in tok.value), '"')
            parts.append(f"{quote}{tok.value}{quote}")
        else:
            parts.append(tok.value)
    return " ".join(parts)
