# Inference package for QuarkLogic Engine
"""
Cross-chain reasoning and belief metrics.

chains    — reasoning chains of gate-or-gap steps with glimpses
averaging — gap inference by similarity-weighted unitary averaging
metrics   — proposition, temporal and spatial metrics, KCBS witness, safety
"""
