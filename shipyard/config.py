from os import environ as env

from dotenv import load_dotenv, find_dotenv


load_dotenv(find_dotenv())

# Datastore kinds
BOATS = "Boats"
LOADS = "Loads"
USERS = "Users"

ALGORITHMS = ["RS256"]


def from_env():
    domain = env.get("AUTH0_DOMAIN", "")
    return {
        "AUTH0_DOMAIN": domain,
        "AUTH0_CLIENT_ID": env.get("AUTH0_CLIENT_ID", ""),
        "AUTH0_CLIENT_SECRET": env.get("AUTH0_CLIENT_SECRET", ""),
        "AUTH0_CALLBACK_URL": env.get("AUTH0_CALLBACK_URL", "http://localhost:8080/auth/callback"),
        # Audience defaults to the client id, as for Auth0 id tokens
        "AUTH0_AUDIENCE": env.get("AUTH0_AUDIENCE") or env.get("AUTH0_CLIENT_ID", ""),
        "SECRET_KEY": env.get("SECRET_KEY", "SECRET_KEY"),
        "PAGE_SIZE": int(env.get("PAGE_SIZE", "5")),
        "LOG_LEVEL": env.get("LOG_LEVEL", "INFO"),
        "APP_ENV": env.get("APP_ENV", "development"),
    }
