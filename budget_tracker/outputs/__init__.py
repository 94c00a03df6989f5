# budget_tracker/outputs/__init__.py
import logging
from importlib import import_module

logger = logging.getLogger(__name__)


def get_output(name, config):
    """Instantiate the writer registered under ``config['output_modules'][name]``."""
    try:
        dotted = config['output_modules'][name]
    except KeyError:
        raise ValueError(f"Unknown output '{name}'") from None
    module_name, cls_name = dotted.rsplit('.', 1)
    output_cls = getattr(import_module(module_name), cls_name)
    logger.debug("Writing '%s' output with %s", name, dotted)
    return output_cls(config)
