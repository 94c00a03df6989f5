# budget_tracker/loaders/__init__.py
import logging
from importlib import import_module

logger = logging.getLogger(__name__)


def get_loader(name, config):
    """Instantiate the loader registered under ``config['loaders'][name]``."""
    try:
        dotted = config['loaders'][name]
    except KeyError:
        raise ValueError(f"Unknown loader '{name}'") from None
    module_name, cls_name = dotted.rsplit('.', 1)
    loader_cls = getattr(import_module(module_name), cls_name)
    logger.debug("Using loader %s for '%s'", dotted, name)
    return loader_cls()
