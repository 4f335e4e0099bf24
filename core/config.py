import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

class Config:
    # Application Configuration
    @property
    def APP_ENV(self) -> str:
        return os.getenv('APP_ENV', 'development')

    # Logging Configuration
    @property
    def LOG_LEVEL(self) -> str:
        return os.getenv('LOG_LEVEL', 'INFO')

    @property
    def LOG_FORMAT(self) -> str:
        return os.getenv('LOG_FORMAT', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    @property
    def LOG_DIR(self) -> str:
        return os.getenv('LOG_DIR', 'logs')

    # LND Configuration
    @property
    def LND_HOST(self) -> str:
        return os.getenv('LND_HOST', 'localhost')

    @property
    def LND_PORT(self) -> int:
        return int(os.getenv('LND_PORT', 10009))

    @property
    def LND_TLS_CERT(self) -> Optional[str]:
        return os.getenv('LND_TLS_CERT')

    @property
    def LND_MACAROON(self) -> Optional[str]:
        # An empty value means "no macaroon", same as leaving it unset
        return os.getenv('LND_MACAROON') or None

    @property
    def LND_PROTO_PATH(self) -> str:
        return os.getenv('LND_PROTO_PATH', 'rpc.proto')

    @property
    def LND_SERVICE_NAME(self) -> str:
        return os.getenv('LND_SERVICE_NAME', 'Lightning')

    @property
    def LND_PROBE_ON_START(self) -> bool:
        return os.getenv('LND_PROBE_ON_START', 'false').lower() == 'true'

    # gRPC Configuration
    @property
    def GRPC_MAX_MESSAGE_LENGTH(self) -> int:
        return int(os.getenv('GRPC_MAX_MESSAGE_LENGTH', 4194304))  # 4MB

    @property
    def GRPC_TIMEOUT_SECONDS(self) -> Optional[float]:
        # 0 disables the per-call deadline
        timeout = float(os.getenv('GRPC_TIMEOUT_SECONDS', 0))
        return timeout if timeout > 0 else None

    def validate(self) -> bool:
        required_vars = [
            'LND_TLS_CERT',
        ]

        for var in required_vars:
            if not getattr(self, var):
                raise ValueError(f"Required environment variable {var} is not set")

        return True

    def get_lnd_connection_params(self) -> dict:
        return {
            'host': self.LND_HOST,
            'port': self.LND_PORT,
            'tls_cert': self.LND_TLS_CERT,
            'macaroon': self.LND_MACAROON,
            'proto_path': self.LND_PROTO_PATH,
            'service_name': self.LND_SERVICE_NAME,
            'timeout_seconds': self.GRPC_TIMEOUT_SECONDS,
            'max_message_length': self.GRPC_MAX_MESSAGE_LENGTH,
        }

    def is_development(self) -> bool:
        return self.APP_ENV == 'development'

    def is_production(self) -> bool:
        return self.APP_ENV == 'production'

    def is_testing(self) -> bool:
        return self.APP_ENV == 'testing'

    def to_dict(self) -> dict:
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if not attr.startswith('_') and not callable(getattr(self, attr))
        }

    def __str__(self) -> str:
        return f"Config(LND_HOST={self.LND_HOST}, LND_PORT={self.LND_PORT}, LND_PROTO_PATH={self.LND_PROTO_PATH})"

class DevelopmentConfig(Config):
    # Profiles pin LOG_LEVEL; the LOG_LEVEL environment variable only applies to the base Config
    LOG_LEVEL = 'DEBUG'

class ProductionConfig(Config):
    LOG_LEVEL = 'INFO'

class TestingConfig(Config):
    LOG_LEVEL = 'DEBUG'
    APP_ENV = 'testing'

config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
