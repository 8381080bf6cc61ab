from mangum import Mangum
from main import app

handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    """AWS Lambda entrypoint (API Gateway proxy events)"""
    return handler(event, context)
