"""Single-file packaging pipeline."""

from streampack.workflow.processor import (
    PackagePlan,
    PackagingProcessor,
    PipelineResult,
    plan_package,
)

__all__ = ["PackagePlan", "PackagingProcessor", "PipelineResult", "plan_package"]
