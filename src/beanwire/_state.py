# beanwire/_state.py
from typing import Optional

_context = None
_root_name: Optional[str] = None
