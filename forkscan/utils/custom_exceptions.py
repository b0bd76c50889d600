from .logger import logger


class BaseCustomException(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NodeError(BaseCustomException):
    def __init__(self, reason: str):
        super().__init__(f"Failed to receive data from node: {reason}")


class ExplorerError(BaseCustomException):
    def __init__(self, reason: str):
        super().__init__(f"Failed to communicate with Blockchain explorer: {reason}")


class DeploymentError(BaseCustomException):
    def __init__(self, reason: str):
        super().__init__(f"Failed to load deployment: {reason}")


class ExceptionHandler:
    raise_exception = False

    @staticmethod
    def initialize(raise_exception: bool) -> None:
        ExceptionHandler.raise_exception = raise_exception

    @staticmethod
    def raise_exception_or_log(custom_exception: BaseCustomException) -> None:
        if ExceptionHandler.raise_exception:
            raise custom_exception
        logger.error(str(custom_exception))
