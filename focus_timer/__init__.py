# -*- coding: utf-8 -*-
"""
Focus Timer - ambient audio server for the browser focus timer
"""

__version__ = '1.0.0'
