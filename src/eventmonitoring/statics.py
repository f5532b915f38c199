"""Constants shared by the eventmonitoring commands."""

from enum import IntEnum

# Field of a downloaded log row that names its event type
SPLIT_FIELD = "EVENT_TYPE"

# EventLogFile.EventType values accepted by `dump --type`
LOG_TYPES = (
    "API",
    "ApexCallout",
    "ApexExecution",
    "ApexRestApi",
    "ApexSoap",
    "ApexTrigger",
    "ApexUnexpectedException",
    "AsyncReportRun",
    "BulkApi",
    "BulkApi2",
    "ChangeSetOperation",
    "ConcurrentLongRunningApexLimit",
    "Console",
    "ContentDistribution",
    "ContentDocumentLink",
    "ContentTransfer",
    "ContinuationCalloutSummary",
    "CorsViolation",
    "CSPViolation",
    "Dashboard",
    "DocumentAttachmentDownloads",
    "ExternalCrossOrgCallout",
    "ExternalCustomApexCallout",
    "ExternalODataCallout",
    "FlowExecution",
    "InsecureExternalAssets",
    "KnowledgeArticleView",
    "LightningError",
    "LightningInteraction",
    "LightningLogger",
    "LightningPageView",
    "LightningPerformance",
    "Login",
    "LoginAs",
    "Logout",
    "MetadataApiOperation",
    "MultiBlockReport",
    "PackageInstall",
    "PlatformEncryption",
    "QueuedExecution",
    "Report",
    "ReportExport",
    "RestApi",
    "Sandbox",
    "Search",
    "SearchClick",
    "Sites",
    "TimeBasedWorkflow",
    "TransactionSecurity",
    "URI",
    "VisualforceRequest",
    "WaveChange",
    "WaveInteraction",
    "WavePerformance",
)


class ExitCode(IntEnum):
    """Process exit statuses."""

    OK = 0
    PIPELINE_FAILED = 1
    CONFIG_ERROR = 2
    NO_CACHE_DIR = 3
    UNSUPPORTED_HANDLER = 4
