"""
ORM event listeners enforcing entity rules at flush time.
"""
