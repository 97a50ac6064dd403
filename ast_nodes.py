ROOT = "ROOT"
BODY = "BODY"
CALL = "CALL"
IF = "IF"
GET = "GET"
WHILE = "WHILE"
STORE = "STORE"
ARGLIST = "ARGLIST"
STRING_LIT = "STRING_LIT"
NUMBER_LIT = "NUMBER_LIT"
RETURN = "RETURN"
OUTPUT = "OUTPUT"
INPUT = "INPUT"
REMOVE = "REMOVE"
FUNCTION = "FUNCTION"
OPERATOR = "OPERATOR"
PASS = "PASS"


class Node:
    # Source offset of the token the node was built from (diagnostics and trace only).
    position: int | None = None

    def __init__(self, text, tag, position=None):
        self.text = text
        self.tag = tag
        self.children = []
        self.parent = None
        self.position = position

    def push(self, node):
        # absent operands are simply not attached
        if node is None:
            return self
        node.parent = self
        self.children.append(node)
        return self

    def child(self, index):
        if 0 <= index < len(self.children):
            return self.children[index]
        return None

    def is_ancestor_or_self(self, candidate) -> bool:
        """Visibility test: `candidate` is None (global), this node, or one of its ancestors."""
        if candidate is None:
            return True
        node = self
        while node is not None:
            if node is candidate:
                return True
            node = node.parent
        return False

    def __repr__(self):
        return f"Node({self.tag}, {self.text!r}, {len(self.children)} children)"
