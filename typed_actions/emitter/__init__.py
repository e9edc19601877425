from typed_actions.emitter.config_emitter import (
    emit_codeowners,
    emit_dependabot,
    emit_discussion_template,
    emit_issue_template,
    emit_pr_template,
)
from typed_actions.emitter.workflow_emitter import EmitReferences, emit_workflow, workflow_document
