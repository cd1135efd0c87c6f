class NotFound(LookupError):
    def __init__(self, resource: str, resource_id: object):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")


class ParameterMissing(ValueError):
    def __init__(self, param: str):
        self.param = param
        super().__init__(f"param is missing: {param}")


class RelationshipMismatch(Exception):
    """Submission, assignment and file do not belong together."""


class PermissionDenied(Exception):
    pass


class FeatureDisabled(Exception):
    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"feature {feature} is not enabled")
