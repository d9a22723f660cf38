from longpoll.schemas.schemas import EventOut, PublishRequest
