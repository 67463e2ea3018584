"""OpenAPI Spec Store - OpenAPI/Swagger 명세서 인제스트 및 정규화 저장"""

__version__ = "0.1.0"
