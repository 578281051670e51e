from .base import Base
from .models.override import KlaraProductOverride  # Registers override table
