"""todo-sync: keep Microsoft To Do and an Obsidian daily note in step."""

__version__ = "0.1.0"
