from typed_actions.importer.codegen import CodeGenerator, GeneratedCode
from typed_actions.importer.importer import IMPORT_TYPES, ImportConfig, Importer, ImportOutcome
from typed_actions.importer.parser import ImportResult, WorkflowParser, parse_workflow, parse_workflow_file
