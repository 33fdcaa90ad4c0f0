from memberhub.workers.tasks.inactivity_sweep import run_inactivity_sweep_task

__all__ = [
    "run_inactivity_sweep_task",
]
