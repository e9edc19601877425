from typed_actions.discover.discoverer import Decl, DeclKind, Discoverer, DiscoveryResult, discover
