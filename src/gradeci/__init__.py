
from .dsl import job, sh, wf, JobBuilder, build
from .runner import run_job, run_workflow, load_workflow
from .model import Job, Step

__all__ = ["job", "sh", "wf", "JobBuilder", "build", "run_job", "run_workflow", "load_workflow", "Job", "Step"]
