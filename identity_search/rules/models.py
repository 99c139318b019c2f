from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class SearchIndexRules(BaseModel):
    url: str = "http://elasticsearch:9200"
    index_name: str = "lha_users"
    username_env: str = "ELASTIC_USERNAME"
    password_env: str = "ELASTIC_PASSWORD"
    verify_certs: bool = False
    bootstrap_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 5.0
    number_of_replicas: int = 0

class BootstrapRules(BaseModel):
    max_attempts: int = Field(default=5, ge=1)
    base_delay_seconds: float = Field(default=1.0, ge=0)
    max_delay_seconds: float = Field(default=30.0, ge=0)
    startup_delay_seconds: float = Field(default=0.0, ge=0)

class LifecycleRules(BaseModel):
    verification_delay_ms: int = Field(default=100, ge=0)
    task_timeout_seconds: float = Field(default=10.0, gt=0)
    worker_count: int = Field(default=2, ge=1)

class AuthRules(BaseModel):
    require_email_verification: bool = True
    auto_sign_in_after_verification: bool = False
    verification_token_ttl_hours: int = 24
    password_min_length: int = 8
    access_token_ttl_minutes: int = 60 * 24

class RateLimitWindow(BaseModel):
    window_seconds: int
    max_attempts: int

class RateLimitRules(BaseModel):
    signup: RateLimitWindow = RateLimitWindow(window_seconds=900, max_attempts=5)
    login: RateLimitWindow = RateLimitWindow(window_seconds=900, max_attempts=5)
    verify: RateLimitWindow = RateLimitWindow(window_seconds=900, max_attempts=10)

class SearchDefaultsRules(BaseModel):
    default_limit: int = 10
    max_limit: int = 100
    fuzziness: str = "AUTO"
    name_boost: float = 2.0
    email_boost: float = 1.5

class Rules(BaseModel):
    project: ProjectRules
    search: SearchIndexRules = SearchIndexRules()
    bootstrap: BootstrapRules = BootstrapRules()
    lifecycle: LifecycleRules = LifecycleRules()
    auth: AuthRules = AuthRules()
    rate_limits: RateLimitRules = RateLimitRules()
    search_defaults: SearchDefaultsRules = SearchDefaultsRules()
