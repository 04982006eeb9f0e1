"""
The MODEL layer contains pure data structures and business logic.
It has NO knowledge of the GUI (Qt) or the Visualization (PyVista).
It deals with frame geometry, slots, orientation, placement rules and I/O.
"""
