# Gates package for QuarkLogic Engine
"""
Typed reasoning operators.

tokens — immutable gate descriptions and their validation
apply  — pure application of a gate to a proposition map
"""
