from .add import add
from .list_keys import list_keys
from .show import show
from .show_all import show_all
from .import_keys import import_keys

__all__ = [
    add,
    list_keys,
    show,
    show_all,
    import_keys,
]
