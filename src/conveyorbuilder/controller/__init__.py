"""
The CONTROLLER layer turns user input into store transitions.
It depends on the store's Qt signals but never on widgets.
"""
