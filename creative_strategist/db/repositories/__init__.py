from creative_strategist.db.repositories.avatars import AvatarConceptsRepository, AvatarsRepository
from creative_strategist.db.repositories.concepts import ConceptsRepository
from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.db.repositories.meta_ads import MetaAdsRepository
from creative_strategist.db.repositories.oauth_link_sessions import OAuthLinkSessionsRepository
from creative_strategist.db.repositories.platform_settings import PlatformSettingsRepository
from creative_strategist.db.repositories.research import InsightsRepository, SourcesRepository
from creative_strategist.db.repositories.scripts import ScriptsRepository
from creative_strategist.db.repositories.users import UsersRepository
