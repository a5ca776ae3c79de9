# Tales API - Core Domain

from .access_policy import AccessPolicy, TaleOperation
from .credentials import AuthSettings, CredentialResolver, CredentialResult, CredentialStatus
from .engagement import EngagementLedger, PairLocks
from .generation_compiler import (
    CompiledGenerationRequest,
    GenerationRequest,
    PromptSections,
    compile_generation_request,
)
from .types import (
    AgeRange,
    ApplyLikeTransition,
    EngagementAction,
    Principal,
    Tale,
    TaleLength,
    TalePatch,
    TaleQuery,
    TaleView,
    User,
)

__all__ = [
    # Access control
    "AccessPolicy",
    "TaleOperation",
    "AuthSettings",
    "CredentialResolver",
    "CredentialResult",
    "CredentialStatus",
    # Engagement
    "EngagementLedger",
    "PairLocks",
    # Generation
    "CompiledGenerationRequest",
    "GenerationRequest",
    "PromptSections",
    "compile_generation_request",
    # Types
    "AgeRange",
    "ApplyLikeTransition",
    "EngagementAction",
    "Principal",
    "Tale",
    "TaleLength",
    "TalePatch",
    "TaleQuery",
    "TaleView",
    "User",
]
