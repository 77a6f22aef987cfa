"""
Queue subsystem.

Components:
- models.py: data structures (Task, FailedTask, QueueStatus) + clock/ids
- task_queue.py: one named, ordered queue with a processing guard
- registry.py: the fixed set of named queues
- dispatcher.py: task kind -> executor registry
- sync_manager.py: the façade (enqueue / process / persist / retention)
"""
