"""High-value constants for the MISMO gateway package."""

# Package metadata
PACKAGE_VERSION = "0.3.0"
SERVER_NAME = "mismo-gateway"
USER_AGENT = f"{SERVER_NAME}/{PACKAGE_VERSION}"

# External API contract consts
DEFAULT_TOKEN_URL = "https://secure.mortgage.meridianlink.com/oauth/token"
DEFAULT_LOAN_URL = "https://edocs.mortgage.meridianlink.com/los/webservice/Loan.asmx"
LOS_NAMESPACE = "http://www.lendersoffice.com/los/webservices/"
CREATE_WITH_OPTIONS_ACTION = f'"{LOS_NAMESPACE}CreateWithOptions"'
SOAP_CONTENT_TYPE = "text/xml; charset=utf-8"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# LOXmlFormat import options: not a lead, MISMO 3.4 import format
IMPORT_IS_LEAD = "False"
IMPORT_FORMAT_MISMO_34 = "12"

# Business logic consts
TOKEN_REFRESH_BUFFER_MINUTES = 5  # refresh 5min early
DEFAULT_TOKEN_EXPIRY_SECONDS = 14400  # 4 hours

# Caller-facing messages
XML_CONTENT_REQUIRED = "XML content is required"
XML_FILE_REQUIRED = "Only .xml files are accepted"
FAULT_PREFIX = "MeridianLink error: "
BUSINESS_ERROR_PREFIX = "MeridianLink: "
LOAN_CREATED_PREFIX = "Loan created: "
REQUEST_PROCESSED = "Request processed"
