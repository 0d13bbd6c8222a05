"""
accessgraph - hierarchical role/permission authorization engine.
"""
