"""
API endpoint modules for ResQ
"""

from resq.api.endpoints import interview, generation, speech

__all__ = ["interview", "generation", "speech"]
