from unused_css.web.app import create_app
from unused_css.web.rewrite import register_rewrite

__all__ = ["create_app", "register_rewrite"]
