"""
Display engine: rendering, intake, orchestration and the ambient presenter
"""
