"""Function calling: schema generation, call detection, coercion, invocation and the loop."""

from .schema_generator import (
    generate_function_schema,
    generate_all_function_schemas,
    generate_parameter_schema,
    schema_problems,
)
from .function_parser import (
    CALL_FUNCTION_MARKER,
    FunctionCallRequest,
    InlineMarkerCall,
    InterpretedReply,
    StructuredCall,
    interpret_reply,
)
from .heuristics import ArgumentHeuristic, HeuristicArgumentMapper, HeuristicMapping, PlaceholderPolicy
from .argument_coercer import ArgumentCoercer, CoercedArguments
from .tool_executor import ToolExecutionResult, ToolInvoker
from .request_builder import RequestBuilder, build_tool_catalogue
from .session import ConversationSession, SessionStore
from .conversation_orchestrator import ConversationOrchestrator, ConversationResult, LoopState

__all__ = [
    # Schemas
    'generate_function_schema',
    'generate_all_function_schemas',
    'generate_parameter_schema',
    'schema_problems',
    # Reply interpretation
    'CALL_FUNCTION_MARKER',
    'FunctionCallRequest',
    'InlineMarkerCall',
    'InterpretedReply',
    'StructuredCall',
    'interpret_reply',
    # Arguments
    'ArgumentHeuristic',
    'HeuristicArgumentMapper',
    'HeuristicMapping',
    'PlaceholderPolicy',
    'ArgumentCoercer',
    'CoercedArguments',
    # Invocation
    'ToolExecutionResult',
    'ToolInvoker',
    # Loop
    'RequestBuilder',
    'build_tool_catalogue',
    'ConversationSession',
    'SessionStore',
    'ConversationOrchestrator',
    'ConversationResult',
    'LoopState',
]
