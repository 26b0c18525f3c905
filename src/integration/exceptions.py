class IntegrationException(Exception):
    """Base exception for integration layer errors."""
    pass


class ResourceNotFoundException(IntegrationException):
    """Raised when a provider resource does not exist (or is not visible yet)."""
    pass


class TagValidationException(IntegrationException):
    """Raised when tags violate provider limits (count, key or value format)."""
    pass


# AWS EC2 Specific Exceptions

class EC2Exception(IntegrationException):
    """Base exception for AWS EC2 related errors."""
    pass


class EC2InstanceNotFoundException(EC2Exception, ResourceNotFoundException):
    """Raised when an EC2 instance is not found."""
    pass


class EC2InstanceCreationException(EC2Exception):
    """Raised when EC2 instance creation fails."""
    pass


class EC2InstanceOperationException(EC2Exception):
    """Raised when an EC2 instance operation (describe/terminate) fails."""
    pass


class EC2TagOperationException(EC2Exception):
    """Raised when an EC2 tag operation fails."""
    pass


class EC2AuthenticationException(EC2Exception):
    """Raised when AWS credentials are invalid or insufficient permissions."""
    pass


class EC2QuotaExceededException(EC2Exception):
    """Raised when AWS resource quota/limit is exceeded."""
    pass


class EC2InvalidParameterException(EC2Exception):
    """Raised when invalid parameters are provided to AWS API."""
    pass


# AWS RDS Specific Exceptions

class RDSException(IntegrationException):
    """Base exception for AWS RDS related errors."""
    pass


class RDSInstanceNotFoundException(RDSException, ResourceNotFoundException):
    """Raised when an RDS DB instance is not found."""
    pass


class RDSInstanceCreationException(RDSException):
    """Raised when RDS DB instance creation fails."""
    pass


class RDSInstanceOperationException(RDSException):
    """Raised when an RDS DB instance operation (describe/tag/delete) fails."""
    pass
