"""API blueprints"""


def serialize_request(service_request):
    return service_request.to_dict(include_relationships=True)


def serialize_requests(service_requests):
    return [serialize_request(sr) for sr in service_requests]
