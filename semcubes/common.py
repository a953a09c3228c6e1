"""Utility functions shared across the package."""

from collections import OrderedDict

__all__ = ["IgnoringDictionary", "to_label", "get_close_match"]


class IgnoringDictionary(OrderedDict):
    """Simple dictionary extension that will ignore any keys of which values
    are empty (None)."""

    def __setitem__(self, key, value):
        if value is not None:
            super().__setitem__(key, value)

    def set(self, key, value):
        """Sets `value` for `key` even if value is null."""
        super().__setitem__(key, value)

    def __repr__(self):
        items = [f"{key}: {value}" for key, value in self.items()]
        return "{%s}" % ", ".join(items)


def to_label(name, capitalize=True):
    """Converts `name` into label by replacing underscores by spaces. If
    `capitalize` is ``True`` (default) then the first letter of the label is
    capitalized."""

    label = name.replace("_", " ")
    if capitalize:
        label = label.capitalize()

    return label


def get_close_match(name, available):
    """Returns a " Did you mean 'x'?" hint for `name` or an empty string."""
    import difflib

    matches = difflib.get_close_matches(name, list(available), n=1)
    if matches:
        return f" Did you mean '{matches[0]}'?"
    return ""
