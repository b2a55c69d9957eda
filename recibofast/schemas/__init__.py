from recibofast.schemas.base import (  # noqa: F401
    Contract,
    ContractSnapshot,
    CreateDocumentRequest,
    CreateResult,
    DeleteDocumentRequest,
    DeleteResult,
    Document,
    DocumentStatus,
    DocumentSummary,
    EditDocumentRequest,
    IssuerOverride,
    ReconcileReport,
    SourceReport,
    SourceStatus,
    StatusUpdateRequest,
    check_issue_date,
)
