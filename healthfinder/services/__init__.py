# Services package init
"""
HealthFinder API — Services Layer
===================================

What:  Query and write logic sitting between routes (HTTP) and the store.
How:   Services take an AsyncSession plus already-parsed inputs and return
       response schemas; they raise HealthFinderError subclasses that the
       global handlers turn into JSON.

Service Inventory:
    - pagination: pageSize/pageNum parsing shared by all list endpoints
    - ClinicService: clinic query composition (search, filters, sort, page,
      filtered count) and clinic lookup
    - ReviewService: review submission with atomic aggregate update, and
      review listings
"""
