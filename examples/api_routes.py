"""
Example showing how SmartAPI reads API metadata from routes and controllers.
"""

from __future__ import annotations

import logging

from smartapi import ApiController, Container, Request, RouteTable, endpoint


class UsersController(ApiController):
    def __init__(self):
        self.scopes("users:read")
        self.scopes("users:write", except_="index|show")
        self.rate_limit(60, 1, except_="index")

    def index(self):
        return ["alice", "bob"]

    def show(self, id):
        return {"id": id}

    @endpoint(scopes="users:admin", protected=True)
    def store(self):
        return {"status": "created"}


def build_table() -> RouteTable:
    table = RouteTable()
    with table.group(prefix="api", version="v1", providers="basic|oauth"):
        table.get("users", "UsersController@index")
        table.get("users/{id}", "UsersController@show")
        table.post("users", {"uses": "UsersController@store", "limit": 10, "expires": 5})
    return table


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    container = Container().bind("UsersController", UsersController)
    table = build_table()

    api = table.api_route(container, Request("POST", "/api/users"))
    print(api.get_scopes(), api.is_protected(), api.get_rate_limit())

    for info in table.describe(container):
        print(info)
