from datetime import datetime


VERSION = "1.0.0"


class Sentinel(str):
    """Text marker for "no value". Prints as its text but is falsy."""

    def __bool__(self):
        return False

    def __repr__(self):
        return f"<{str(self)}>"


UNDEFINED = Sentinel("Undefined")
NULL = Sentinel("Null")


class Binding:
    def __init__(self, name, value, params=None, anchor=None):
        self.name = name
        self.value = value
        self.params = params    # ARGLIST node when the value is a function body
        self.anchor = anchor    # scope anchor (AST node); None means global

    def __repr__(self):
        return f"Binding({self.name!r}, {self.value!r})"


class Memory:
    """Flat binding table. Newest entries first; removed entries leave a None hole."""

    def __init__(self, started=None):
        started = started or datetime.now()
        self.entries = [
            Binding("LDRX", f"LDRX (MIT) Antoine LANDRIEUX v{VERSION}"),
            Binding("DATE", started.strftime("%a %b %d %Y")),
            Binding("TIME", int(started.timestamp() * 1000)),
        ]

    def lookup(self, name, access):
        if access is None:
            return None
        for index, binding in enumerate(self.entries):
            if binding is None or binding.name != name:
                continue
            if access.is_ancestor_or_self(binding.anchor):
                return index
        return None

    def get(self, name, access):
        index = self.lookup(name, access)
        if index is None:
            return None
        return self.entries[index]

    def store(self, name, value, params, access):
        index = self.lookup(name, access)
        if index is not None:
            # the anchor of an existing binding never moves
            binding = self.entries[index]
            binding.value = value
            binding.params = params
            return binding

        binding = Binding(name, value, params, access)
        self.entries.insert(0, binding)
        return binding

    def remove(self, name, access) -> bool:
        index = self.lookup(name, access)
        if index is None:
            return False
        self.entries[index] = None
        return True

    def live(self):
        return [b for b in self.entries if b is not None]

    def __len__(self):
        return len(self.live())
